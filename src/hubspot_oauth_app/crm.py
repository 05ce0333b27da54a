import logging
from typing import Any, Mapping, Optional, Union

import requests

from .oauth import ProviderError, error_from_response


logger = logging.getLogger(__name__)


def get_contact(
    access_token: str,
    config: Mapping[str, Any],
    http: Optional[requests.Session] = None,
) -> Union[dict[str, Any], ProviderError, None]:
    """Fetch the first contact from the CRM contacts list.

    Returns ``None`` when the account has no contacts and a
    ``ProviderError`` when the call fails.
    """

    http = http or requests
    headers = {
        "Authorization": f"Bearer {access_token}",
        "Content-Type": "application/json",
    }
    try:
        response = http.get(
            config["CONTACTS_URL"],
            headers=headers,
            params={"count": 1},
            timeout=config.get("HTTP_TIMEOUT", 10),
        )
    except requests.RequestException as exc:
        logger.error("Unable to retrieve contact: %s", exc)
        return ProviderError(message=str(exc))

    if not response.ok:
        error = error_from_response(response)
        logger.error(
            "Unable to retrieve contact (status=%s): %s", response.status_code, error.message
        )
        return error

    try:
        contacts = response.json().get("contacts") or []
        if not isinstance(contacts, list):
            raise TypeError(f"contacts is {type(contacts).__name__}, expected a list")
    except (ValueError, AttributeError, TypeError) as exc:
        logger.error("Unable to retrieve contact: malformed response (%s)", exc)
        return ProviderError(
            message="Malformed contacts response from provider",
            status_code=response.status_code,
        )
    return contacts[0] if contacts else None
