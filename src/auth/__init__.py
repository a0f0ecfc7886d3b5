"""
Authentication module for the Pinky Promise API.

This module provides the session lifecycle:
- User registration
- Credential verification and access/refresh token issuance
- Access token refresh
- Rate limiting and captcha gating of the public entry points
"""
