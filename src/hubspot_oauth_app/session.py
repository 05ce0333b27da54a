import uuid

from flask import session


SESSION_ID_KEY = "sid"


def get_session_id() -> str:
    """Return the opaque identifier of the current browser session.

    A new identifier is minted on the first request of a session and kept
    in the signed session cookie; it keys every token the app stores.
    """

    session_id = session.get(SESSION_ID_KEY)
    if not session_id:
        session_id = uuid.uuid4().hex
        session[SESSION_ID_KEY] = session_id
    return session_id


def _ensure_session_id() -> None:
    get_session_id()


def init_app(app) -> None:
    app.before_request(_ensure_session_id)
