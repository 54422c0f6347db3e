import math
import os
from typing import Any, Callable, Dict

from flask import Flask, jsonify, request

from avlmap.errors import KeyCoercionError
from avlmap.treemap import AVLTreeMap

KEY_TYPES: Dict[str, Callable[[str], Any]] = {"str": str, "int": int, "float": float}

app = Flask(__name__)

store = AVLTreeMap()

STATE: Dict[str, Any] = {
    "key_type": "str",
    "host": os.environ.get("AVLMAP_HOST", "127.0.0.1"),
    "port": int(os.environ.get("AVLMAP_PORT", "5000")),
}


def configure_key_type(name: str) -> None:
    """Select how path keys are converted; unknown names fall back to str."""
    name = (name or "").strip().lower()
    if name not in KEY_TYPES:
        print(f"[startup] Unknown AVLMAP_KEY_TYPE {name!r}, using 'str'")
        name = "str"
    STATE["key_type"] = name


configure_key_type(os.environ.get("AVLMAP_KEY_TYPE", "str"))


def ok(data=None, **extra):
    payload = {"ok": True}
    if data is not None:
        payload["data"] = data
    payload.update(extra)
    return jsonify(payload)

def err(message: str, status: int = 400, **extra):
    payload = {"ok": False, "error": message}
    payload.update(extra)
    return jsonify(payload), status

def parse_key(raw: str) -> Any:
    """Convert a path segment to the configured key type."""
    key_type = STATE["key_type"]
    try:
        key = KEY_TYPES[key_type](raw)
    except ValueError:
        raise KeyCoercionError(raw, key_type) from None
    if isinstance(key, float) and not math.isfinite(key):  # NaN is unordered; inf has no JSON form
        raise KeyCoercionError(raw, key_type)
    return key


@app.errorhandler(KeyCoercionError)
def handle_bad_key(e: KeyCoercionError):
    return err(str(e))


@app.get("/api/status")
def api_status():
    return ok({
        "size": len(store),
        "height": store.height,
        "balanced": store.is_my_tree_balanced(),
        "key_type": STATE["key_type"],
    })


@app.get("/api/map/<raw_key>")
def api_map_find(raw_key: str):
    key = parse_key(raw_key)
    entry = store.find_entry(key)
    if entry is None:
        return err("key not found", 404)
    return ok({"key": entry.get_key(), "value": entry.get_value()})

@app.post("/api/map/<raw_key>")
def api_map_insert(raw_key: str):
    key = parse_key(raw_key)
    data = request.get_json(silent=True)
    if not isinstance(data, dict) or "value" not in data:
        return err("JSON body with a 'value' field required")

    store.insert(key, data["value"])
    return ok({"key": key, "value": data["value"], "size": len(store)})

@app.post("/api/map/<raw_key>/delete")
def api_map_erase(raw_key: str):
    key = parse_key(raw_key)
    existed = key in store
    store.erase(key)
    return ok({"key": key, "existed": existed, "size": len(store)})

@app.post("/api/map/clear")
def api_clear():
    store.clear()
    return ok({"size": 0})


if __name__ == "__main__":
    print(f"[startup] Serving AVL map on {STATE['host']}:{STATE['port']} (keys as {STATE['key_type']})")
    app.run(host=STATE["host"], port=STATE["port"], debug=True, use_reloader=False, threaded=False)
