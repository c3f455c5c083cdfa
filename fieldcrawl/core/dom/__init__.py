"""Browser session factory and exports."""

from fieldcrawl.core.dom.base import BrowserSession
from fieldcrawl.core.dom.simple import SimpleSession
from fieldcrawl.core.dom.playwright import PlaywrightSession


def create_session(session_type: str = 'playwright', **kwargs) -> BrowserSession:
    """Create a browser session.

    Args:
        session_type: Type of session ('playwright' or 'simple')
        **kwargs: Additional arguments for the session

    Returns:
        BrowserSession instance

    """
    sessions: dict[str, type[BrowserSession]] = {
        'playwright': PlaywrightSession,
        'simple': SimpleSession,
    }

    if session_type not in sessions:
        raise ValueError(f'Unknown session type: {session_type}. Choose from: {list(sessions.keys())}')

    return sessions[session_type](**kwargs)


__all__ = ['BrowserSession', 'SimpleSession', 'PlaywrightSession', 'create_session']
