#!/usr/bin/env python3
"""
OAuth2 authorization-code exchange against the Discord HTTP API.
The RPC AUTHORIZE command only yields a code; the access token used by
AUTHENTICATE comes from this endpoint.
"""

from typing import Any, Dict, Optional

import aiohttp

from ..exceptions import AuthenticationError


TOKEN_URL = "https://discord.com/api/oauth2/token"


async def exchange_code(client_id: str,
                        client_secret: str,
                        code: str,
                        redirect_uri: str,
                        session: Optional[aiohttp.ClientSession] = None,
                        token_url: str = TOKEN_URL) -> Dict[str, Any]:
    """
    Trade an authorization code for an access token.

    Args:
        client_id: Application id
        client_secret: Application secret
        code: Code returned by the AUTHORIZE command
        redirect_uri: Redirect URI registered for the application
        session: Reuse an existing aiohttp session (one is created otherwise)
        token_url: Token endpoint

    Returns:
        Token payload with at least ``access_token`` and ``expires_in``

    Raises:
        AuthenticationError: The endpoint refused the code
    """
    data = {
        'client_id': client_id,
        'client_secret': client_secret,
        'grant_type': 'authorization_code',
        'code': code,
        'redirect_uri': redirect_uri,
    }

    owns_session = session is None
    if owns_session:
        session = aiohttp.ClientSession()
    try:
        async with session.post(token_url, data=data) as response:
            if response.status >= 400:
                text = await response.text()
                raise AuthenticationError(f"Token exchange failed ({response.status}): {text}")
            payload = await response.json(content_type=None)
    except aiohttp.ClientError as e:
        raise AuthenticationError(f"Token exchange failed: {e}") from e
    finally:
        if owns_session:
            await session.close()

    if 'access_token' not in payload:
        raise AuthenticationError(f"Token endpoint returned no access token: {payload}")
    return payload
