# app/utils/security.py
"""
Token generation, answer hashing and input validation helpers
"""

import copy
import hashlib
import hmac
import ipaddress
import json
import re
import secrets
from typing import Any, Dict, Optional

from app.utils.logger import logger

TOKEN_PATTERN = re.compile(r"^[a-f0-9]{64}$", re.IGNORECASE)
EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
CONTROL_CHARS = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]")


def generate_token() -> str:
    """32 random bytes as 64 lowercase hex characters."""
    return secrets.token_hex(32)


def normalize_answer(answer: Any) -> str:
    return re.sub(r"\s+", " ", str(answer).strip().lower())


def hash_answer(answer: Any) -> Optional[str]:
    if answer is None:
        return None
    normalized = normalize_answer(answer)
    if not normalized:
        return None
    return hashlib.sha256(normalized.encode("utf-8")).hexdigest()


def answers_match(submitted_hash: Optional[str], stored_hash: Optional[str]) -> bool:
    if not submitted_hash or not stored_hash:
        return False
    return hmac.compare_digest(submitted_hash.encode("utf-8"), stored_hash.encode("utf-8"))


def secure_security_config(security_type: str, config: Any) -> Any:
    """Replace the plaintext answer in a security config with its hash."""
    if isinstance(config, str):
        try:
            config = json.loads(config)
        except ValueError:
            logger.warning("⚠️ securityConfig is not valid JSON, storing as-is")
            return config
    if not isinstance(config, dict):
        return config

    secured: Dict[str, Any] = copy.deepcopy(config)
    if security_type == "quiz" and secured.get("correctAnswer"):
        secured["correctAnswerHash"] = hash_answer(secured.pop("correctAnswer"))
        logger.info("🔒 Hashed quiz answer (original removed)")
    elif security_type == "date" and secured.get("correctDate"):
        secured["correctDateHash"] = hash_answer(str(secured.pop("correctDate")).strip())
        logger.info("🔒 Hashed date answer (original removed)")
    return secured


def is_valid_email(email: Any) -> bool:
    return isinstance(email, str) and bool(EMAIL_PATTERN.match(email.strip()))


def is_valid_token(token: Any) -> bool:
    return isinstance(token, str) and bool(TOKEN_PATTERN.match(token))


def sanitize_string(value: Any, max_length: int = 10000) -> Any:
    if not isinstance(value, str):
        return value
    return CONTROL_CHARS.sub("", value.strip()[:max_length])


def anonymize_ip(ip: Optional[str]) -> str:
    if not ip:
        return "unknown"
    try:
        address = ipaddress.ip_address(ip)
    except ValueError:
        return "unknown"
    if address.version == 4:
        octets = str(address).split(".")
        return f"{octets[0]}.{octets[1]}.xxx.xxx"
    groups = address.exploded.split(":")
    return ":".join(groups[:4]) + ":xxxx:xxxx:xxxx:xxxx"
