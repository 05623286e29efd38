from .auth import TGBAuthError, get_access_token, login_and_save_tokens
from .client import TGBClient, TGBError, create_tgb_client, extract_error_message

__all__ = [
    "TGBAuthError",
    "TGBClient",
    "TGBError",
    "create_tgb_client",
    "extract_error_message",
    "get_access_token",
    "login_and_save_tokens",
]
