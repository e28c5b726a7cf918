"""
Media helpers for action templates.

Media is attached to action templates (``actions``) and matched to action
instances by name. It plays no part in progress rules.
"""

from typing import Dict, Iterable, List

from schemas.job import ActionMedia

MEDIA_KINDS = ("image", "video", "audio")


def media_kind(media_type: str) -> str:
    """
    Classify a media type string as image, video, audio, or other.

    Matching is a case-insensitive substring test, so both ``image/png`` and
    ``IMAGE`` are images.
    """
    lowered = (media_type or "").lower()
    for kind in MEDIA_KINDS:
        if kind in lowered:
            return kind
    return "other"


def group_media_by_action_name(
    action_names_by_id: Dict[str, str], media: Iterable[ActionMedia]
) -> Dict[str, List[ActionMedia]]:
    """
    Group media rows under the name of the action template they belong to.

    Action templates without media are left out of the result.

    Args:
        action_names_by_id: Action template id -> action name
        media: Media rows for those templates

    Returns:
        Action name -> media rows, in input order
    """
    grouped: Dict[str, List[ActionMedia]] = {}
    for item in media:
        name = action_names_by_id.get(item.action_id)
        if name is None:
            continue
        grouped.setdefault(name, []).append(item)
    return grouped


def media_to_dict(item: ActionMedia) -> dict:
    """Serialize one media row with its derived kind."""
    data = item.model_dump()
    data["kind"] = media_kind(item.media_type)
    return data
