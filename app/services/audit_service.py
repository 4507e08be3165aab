# app/services/audit_service.py
"""
Security audit trail (token access, security validation, rate limit violations)
"""

from typing import Any, Optional

from sqlalchemy.exc import SQLAlchemyError

from app.models.audit import SecurityAuditLog
from app.models.base import AsyncSessionLocal
from app.utils.logger import logger, mask_token
from app.utils.security import anonymize_ip


class AuditService:
    def __init__(self, session_factory=None):
        self.session_factory = session_factory or AsyncSessionLocal

    async def log_security_event(self, event_type: str, ip: Optional[str] = None, **details: Any):
        """Audit writes run on their own session and never raise."""
        try:
            async with self.session_factory() as session:
                session.add(SecurityAuditLog(
                    EVENT_TYPE=event_type,
                    IP=anonymize_ip(ip) if ip else None,
                    DETAILS=details or None,
                ))
                await session.commit()
        except SQLAlchemyError as e:
            logger.error(f"❌ Error logging security event: {e}")

    async def log_token_access(self, ip: Optional[str], token: str, success: bool, reason: Optional[str] = None,
                               user_agent: Optional[str] = None):
        await self.log_security_event(
            "token_access",
            ip=ip,
            token=mask_token(token),
            success=success,
            reason=reason,
            userAgent=user_agent,
        )

    async def log_security_validation(self, ip: Optional[str], letter_id: str, success: bool,
                                      reason: Optional[str] = None):
        await self.log_security_event(
            "security_validation",
            ip=ip,
            letterId=letter_id,
            success=success,
            reason=reason,
        )

    async def log_rate_limit_violation(self, ip: Optional[str], scope: str, endpoint: str):
        await self.log_security_event("rate_limit_violation", ip=ip, scope=scope, endpoint=endpoint)


audit_service = AuditService()
