"""
Internship Portal
REST backend for internship postings, applications, notifications and dashboards.

Architecture:
- MongoDB: users, internships, applications, notifications, meetings
- JWT sessions for interns, mentors and admins
- SMTP (yagmail) for best-effort recruiter emails
"""

__version__ = "1.0.0"
