from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

# snake_case attribute -> camelCase key of the public JSON shape
_JSON_KEYS = {
    "cover_image": "coverImage",
    "project_type": "projectType",
    "total_paid": "totalPaid",
    "service_fees_collected": "serviceFeesCollected",
    "last_published": "lastPublished",
    "last_updated": "lastUpdated",
    "created_on": "createdOn",
    "bitcoin_contributors": "bitcoinContributors",
    "litecoin_contributors": "litecoinContributors",
}
_ATTRS = {v: k for k, v in _JSON_KEYS.items()}

_TRUE_STRINGS = {"true", "1", "yes"}


def _flag(v: Any) -> bool:
    if isinstance(v, bool):
        return v
    if isinstance(v, (int, float)):
        return v == 1
    if isinstance(v, str):
        return v.strip().lower() in _TRUE_STRINGS
    return False


def _number(v: Any) -> float:
    # Only numeric CMS values count; text such as "2,500" is treated as 0.
    if isinstance(v, (int, float)) and not isinstance(v, bool):
        return float(v)
    return 0.0


def _ids(v: Any) -> List[str]:
    if not v:
        return []
    if isinstance(v, str):
        return [v]
    return [str(x) for x in v if x]


@dataclass
class Project:
    id: str
    name: str
    slug: str
    summary: str = ""
    status: str = ""
    content: Optional[str] = None
    cover_image: Optional[str] = None
    project_type: Optional[str] = None
    hidden: bool = False
    recurring: bool = False
    total_paid: float = 0.0
    service_fees_collected: float = 0.0
    website: Optional[str] = None
    github: Optional[str] = None
    twitter: Optional[str] = None
    discord: Optional[str] = None
    telegram: Optional[str] = None
    reddit: Optional[str] = None
    facebook: Optional[str] = None
    last_published: Optional[str] = None
    last_updated: Optional[str] = None
    created_on: Optional[str] = None
    bitcoin_contributors: List[str] = field(default_factory=list)
    litecoin_contributors: List[str] = field(default_factory=list)
    advocates: List[str] = field(default_factory=list)
    hashtags: List[str] = field(default_factory=list)

    @classmethod
    def from_webflow(cls, item: Dict[str, Any]) -> "Project":
        f = item.get("fieldData") or {}
        cover = f.get("cover-image")
        return cls(
            id=str(item.get("id") or ""),
            name=f.get("name") or "",
            slug=f.get("slug") or "",
            summary=f.get("summary") or "",
            content=f.get("content"),
            cover_image=cover.get("url") if isinstance(cover, dict) else None,
            status=(f.get("status") or "").strip(),
            project_type=f.get("project-type"),
            hidden=_flag(f.get("hidden")),
            recurring=_flag(f.get("recurring")),
            total_paid=_number(f.get("total-paid")),
            service_fees_collected=_number(f.get("service-fees-collected")),
            website=f.get("website-link"),
            github=f.get("github-link"),
            twitter=f.get("twitter-link"),
            discord=f.get("discord-link"),
            telegram=f.get("telegram-link"),
            reddit=f.get("reddit-link"),
            facebook=f.get("facebook-link"),
            last_published=item.get("lastPublished"),
            last_updated=item.get("lastUpdated"),
            created_on=item.get("createdOn"),
            bitcoin_contributors=_ids(f.get("bitcoin-contributors")),
            litecoin_contributors=_ids(f.get("litecoin-contributors")),
            advocates=_ids(f.get("advocates")),
            hashtags=_ids(f.get("hashtags")),
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Project":
        known = set(cls.__dataclass_fields__)
        kwargs = {}
        for key, value in data.items():
            attr = _ATTRS.get(key, key)
            if attr in known:
                kwargs[attr] = value
        return cls(**kwargs)

    def as_dict(self) -> Dict[str, Any]:
        return {_JSON_KEYS.get(k, k): v for k, v in asdict(self).items()}

    @property
    def contributor_ids(self) -> List[str]:
        seen: set[str] = set()
        out: List[str] = []
        for cid in (*self.bitcoin_contributors, *self.litecoin_contributors, *self.advocates):
            if cid not in seen:
                seen.add(cid)
                out.append(cid)
        return out

    def summary_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "slug": self.slug,
            "summary": self.summary,
            "coverImage": self.cover_image,
            "status": self.status,
            "projectType": self.project_type,
            "totalPaid": self.total_paid,
        }


@dataclass
class Contributor:
    id: str
    name: str
    slug: str = ""
    profile_picture: Optional[str] = None
    twitter: Optional[str] = None
    github: Optional[str] = None
    linkedin: Optional[str] = None

    @classmethod
    def from_webflow(cls, item: Dict[str, Any]) -> "Contributor":
        f = item.get("fieldData") or {}
        pic = f.get("profile-picture")
        return cls(
            id=str(item.get("id") or ""),
            name=f.get("name") or "",
            slug=f.get("slug") or "",
            profile_picture=pic.get("url") if isinstance(pic, dict) else None,
            twitter=f.get("twitter-link"),
            github=f.get("github-link"),
            linkedin=f.get("linkedin-link"),
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Contributor":
        d = dict(data)
        d["profile_picture"] = d.pop("profilePicture", None)
        known = set(cls.__dataclass_fields__)
        return cls(**{k: v for k, v in d.items() if k in known})

    def as_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["profilePicture"] = d.pop("profile_picture")
        return d
