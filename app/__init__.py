"""
Dearly Backend API

Letter sharing service
- Tokenized letter links with auto-renewal
- Hashed security questions and read receipts
- Immediate and scheduled email delivery
- Games, quizzes, date invitations and notifications
"""

__version__ = "1.0.0"
__author__ = "Dearly Team"
