"""Shared API dependencies."""
from fastapi import Depends, Request

from rollcall.db import get_db
from rollcall.core.security import actor_name, verify_admin_token
from rollcall.core.rate_limit import get_client_ip


def get_actor(payload: dict = Depends(verify_admin_token)) -> str:
    """Staff name from the admin token, used as the audit actor."""
    return actor_name(payload)


def client_ip(request: Request) -> str:
    return get_client_ip(request)


__all__ = ["get_db", "verify_admin_token", "get_actor", "client_ip"]
