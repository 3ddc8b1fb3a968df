# todo_manage/handler.py
from typing import Dict

import serverless_wsgi

from .app import app


def extract_claims(event: dict) -> Dict[str, str]:
    """JWT claims from an API Gateway event (HTTP API v2 or REST API v1)."""
    authorizer = (event.get("requestContext") or {}).get("authorizer") or {}
    if not isinstance(authorizer, dict):
        return {}
    if "jwt" in authorizer:
        return (authorizer.get("jwt") or {}).get("claims") or {}
    return authorizer.get("claims") or {}


def handler(event, context):
    # the admin app reads the caller from X-User-Sub / X-User-Email
    claims = extract_claims(event)
    headers = event.get("headers") or {}
    if claims.get("sub"):
        headers["X-User-Sub"] = claims["sub"]
    email = claims.get("email") or claims.get("cognito:username")
    if email:
        headers["X-User-Email"] = email
    event["headers"] = headers

    return serverless_wsgi.handle_request(app, event, context)
