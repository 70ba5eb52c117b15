from importlib import resources
from typing import Dict, Optional

import yaml


def _flatten(data: Dict, prefix: str = "") -> Dict[str, str]:
    flat: Dict[str, str] = {}
    for key, value in data.items():
        full_key = f"{prefix}.{key}" if prefix else str(key)
        if isinstance(value, dict):
            flat.update(_flatten(value, full_key))
        elif value is not None:
            flat[full_key] = str(value)
    return flat


class MessageCatalog:
    """
    Resolves dotted message ids ("merge.failed") to format templates.
    Unknown ids resolve to themselves.
    """

    def __init__(self, templates: Optional[Dict[str, str]] = None):
        self._templates: Dict[str, str] = dict(templates or {})

    @classmethod
    def from_yaml(cls, text: str) -> "MessageCatalog":
        try:
            content = yaml.safe_load(text)
        except yaml.YAMLError:
            return cls()
        if not isinstance(content, dict):
            return cls()
        return cls(_flatten(content))

    @classmethod
    def default(cls) -> "MessageCatalog":
        asset = resources.files("graft.common").joinpath("assets/messages.yaml")
        return cls.from_yaml(asset.read_text(encoding="utf-8"))

    def get(self, msg_id: str) -> str:
        return self._templates.get(msg_id, msg_id)

    def __contains__(self, msg_id: str) -> bool:
        return msg_id in self._templates
