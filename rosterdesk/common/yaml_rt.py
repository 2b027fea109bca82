# common/yaml_rt.py
import logging
import os
from io import StringIO

from ruamel.yaml import YAML
from ruamel.yaml.comments import CommentedMap
from ruamel.yaml.error import YAMLError

from rosterdesk.common.context import AppState

logger = logging.getLogger(__name__)

# non-secret fields only; keys live in the encrypted profile
_SETTINGS_FIELDS = {
    "supabase": ("url", "teacher_id", "students_table"),
    "assistant": ("base_url", "model", "title_model", "temperature"),
}


def yaml_loader() -> YAML:
    y = YAML()
    y.preserve_quotes = True
    y.indent(mapping=2, sequence=4, offset=2)
    return y


def yaml_load(text: str):
    y = yaml_loader()
    return y.load(text) or CommentedMap()


def yaml_dump(data) -> str:
    y = yaml_loader()
    buf = StringIO()
    y.dump(data, buf)
    return buf.getvalue()


def load_settings(state: AppState, path: str = None) -> bool:
    """Overlay settings.yml onto state. Returns False when there is no file."""
    path = path or state.settings_path
    if not os.path.isfile(path):
        return False
    with open(path, "r", encoding="utf-8") as f:
        try:
            doc = yaml_load(f.read())
        except YAMLError as e:
            raise ValueError(f"Could not parse settings file {path}: {e}") from e
    if not isinstance(doc, dict):
        raise ValueError(f"Settings file {path} must be a mapping.")
    for section, names in _SETTINGS_FIELDS.items():
        values = doc.get(section) or {}
        target = getattr(state, section)
        for name in names:
            if name in values and values[name] is not None:
                current = getattr(target, name)
                setattr(target, name, type(current)(values[name]))
    logger.info("Loaded settings from %s", path)
    return True


def save_settings(state: AppState, path: str = None) -> str:
    """Write non-secret settings, keeping whatever comments the file already has."""
    path = path or state.settings_path
    doc = CommentedMap()
    if os.path.isfile(path):
        with open(path, "r", encoding="utf-8") as f:
            doc = yaml_load(f.read())
    for section, names in _SETTINGS_FIELDS.items():
        sec = doc.get(section)
        if not isinstance(sec, dict):
            sec = CommentedMap()
            doc[section] = sec
        source = getattr(state, section)
        for name in names:
            sec[name] = getattr(source, name)
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        f.write(yaml_dump(doc))
    logger.info("Saved settings to %s", path)
    return path
