from __future__ import annotations

import os
from typing import Any, Dict


def _getenv(key: str, default: str) -> str:
    v = os.getenv(key)
    return default if v is None or not v.strip() else v.strip()


SITE_METADATA: Dict[str, Any] = {
    "title": _getenv("SITE_TITLE", "Litecoin"),
    "author": _getenv("SITE_AUTHOR", "Litecoin Foundation Inc."),
    "header_title": _getenv("SITE_HEADER_TITLE", "Litecoin"),
    "description": _getenv(
        "SITE_DESCRIPTION",
        "Crowdfunding Litecoin Projects, One Open-Source Project at a Time.",
    ),
    "language": "en-us",
    "locale": "en-US",
    "site_url": _getenv("SITE_URL", "https://litecoin.com"),
    "site_repo": _getenv("SITE_REPO", "https://github.com/IndigoNakamoto/Litecoin-OpenSource-Fund"),
    "site_logo": "/static/images/twitter.png",
    "social_banner": "/static/images/twitter.png",
    "email": _getenv("SITE_EMAIL", "support@litecoin.com"),
    "github": "https://github.com/litecoin-project",
    "twitter": "https://twitter.com/ltcfoundation",
    "reddit": "https://reddit.com/r/litecoin",
    # Pseudo-project used for general foundation donations.
    "foundation_project": {
        "slug": "litecoin-foundation",
        "name": "Litecoin Foundation",
        "coverImage": "/static/images/projects/Litecoin_Foundation_Project.png",
    },
}
