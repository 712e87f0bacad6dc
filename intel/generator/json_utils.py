import json
import re
from typing import Any, Dict, Iterable, Optional

from .gemini_client import ResponseParseError

_FENCED_JSON_RE = re.compile(r"```(?:json)?\s*([\s\S]*?)```", re.IGNORECASE)


def _loads_object(text: str) -> Optional[Dict[str, Any]]:
    try:
        data = json.loads(text)
    except (TypeError, ValueError):
        return None
    return data if isinstance(data, dict) else None


def extract_json(text: str, allow_embedded: bool = False) -> Dict[str, Any]:
    """Extrai o objeto JSON da resposta do modelo.

    Ordem: bloco ```json, depois o texto inteiro e, com ``allow_embedded``,
    o trecho entre o primeiro '{' e o último '}'.
    """
    text = (text or "").strip()
    if not text:
        raise ResponseParseError("Empty model response")

    fenced = _FENCED_JSON_RE.search(text)
    if fenced:
        data = _loads_object(fenced.group(1).strip())
        if data is not None:
            return data

    data = _loads_object(text)
    if data is not None:
        return data

    if allow_embedded:
        start, end = text.find("{"), text.rfind("}")
        if start != -1 and end > start:
            data = _loads_object(text[start:end + 1])
            if data is not None:
                return data

    raise ResponseParseError(f"No JSON object in model response: {text[:120]!r}")


def get_path(data: Dict[str, Any], path: str) -> Any:
    node: Any = data
    for key in path.split("."):
        if not isinstance(node, dict) or key not in node:
            return None
        node = node[key]
    return node


def set_path(data: Dict[str, Any], path: str, value: Any):
    keys = path.split(".")
    node = data
    for key in keys[:-1]:
        if not isinstance(node.get(key), dict):
            node[key] = {}
        node = node[key]
    node[keys[-1]] = value


def pick_sections(data: Dict[str, Any], paths: Iterable[str]) -> Dict[str, Any]:
    """Subconjunto de ``data`` com só as seções de topo citadas em ``paths``."""
    out: Dict[str, Any] = {}
    for path in paths:
        top = path.split(".")[0]
        if top in data:
            out[top] = data[top]
    return out
