from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class PredefinedGlobal:
    name: str
    writable: bool = False
    ignore_shadow: bool = False


def _group(*names: str, writable: bool = False) -> dict[str, PredefinedGlobal]:
    return {name: PredefinedGlobal(name=name, writable=writable) for name in names}


def _shadowable(*names: str) -> dict[str, PredefinedGlobal]:
    return {name: PredefinedGlobal(name=name, ignore_shadow=True) for name in names}


RESERVED_WORDS = frozenset({
    "arguments",
    "NaN",
    "break",
    "continue",
    "delete",
    "do",
    "new",
    "undefined",
})

ECMA_IDENTIFIERS = _group(
    "Array", "Boolean", "Date", "decodeURI", "decodeURIComponent", "encodeURI",
    "encodeURIComponent", "Error", "eval", "EvalError", "Function", "hasOwnProperty",
    "isFinite", "isNaN", "JSON", "Math", "Number", "Object", "parseInt", "parseFloat",
    "RangeError", "ReferenceError", "RegExp", "String", "SyntaxError", "TypeError",
    "URIError", "Infinity", "NaN", "undefined", "arguments",
)

NEW_ECMA_IDENTIFIERS = _group("Set", "Map", "WeakMap", "WeakSet", "Proxy", "Promise")

BROWSER = {
    **_group(
        "Audio", "Blob", "addEventListener", "applicationCache", "atob", "btoa",
        "CanvasGradient", "CanvasPattern", "CanvasRenderingContext2D", "clearInterval",
        "clearTimeout", "close", "CustomEvent", "DOMParser", "defaultStatus", "Element",
        "ElementTimeControl", "Event", "event", "FileReader", "FormData", "focus", "frames",
        "getComputedStyle", "HTMLElement", "HTMLAnchorElement", "HTMLBodyElement",
        "HTMLButtonElement", "HTMLCanvasElement", "HTMLDivElement", "HTMLFormElement",
        "HTMLIFrameElement", "HTMLImageElement", "HTMLInputElement", "HTMLScriptElement",
        "HTMLSelectElement", "HTMLTextAreaElement", "HTMLVideoElement", "Image",
        "localStorage", "matchMedia", "MessageChannel", "MessageEvent", "MessagePort",
        "MouseEvent", "moveBy", "moveTo", "MutationObserver", "Node", "NodeFilter",
        "NodeList", "navigator", "open", "openDatabase", "opener", "Option", "print",
        "requestAnimationFrame", "removeEventListener", "resizeBy", "resizeTo", "screen",
        "scroll", "scrollBy", "scrollTo", "sessionStorage", "setInterval", "setTimeout",
        "SharedWorker", "SVGElement", "SVGDocument", "SVGSVGElement", "TimeEvent", "URL",
        "WebSocket", "window", "Worker", "XMLHttpRequest", "XMLSerializer",
        "XPathEvaluator", "XPathException", "XPathExpression", "XPathNamespace",
        "XPathNSResolver", "XPathResult",
    ),
    **_group("onbeforeunload", "onblur", "onerror", "onfocus", "onload", "onresize", "onunload", writable=True),
    **_shadowable("blur", "closed", "document", "history", "length", "location", "name", "parent", "status", "top"),
}

DEVEL = _group("alert", "confirm", "console", "Debug", "opera", "prompt")

NONSTANDARD = _group("escape", "unescape")

NODE = {
    **_group("__filename", "__dirname", "GLOBAL", "global", "root", "module", "require"),
    **_group(
        "Buffer", "console", "exports", "process", "setTimeout", "clearTimeout",
        "setInterval", "clearInterval", "setImmediate", "clearImmediate",
        writable=True,
    ),
}

OBJJ_RUNTIME = _group(
    "YES", "NO", "nil", "Nil", "NULL", "objj_msgSend", "objj_msgSendSuper",
    "objj_getClass", "objj_getMetaClass", "objj_getProtocol", "objj_allocateClassPair",
    "objj_registerClassPair", "objj_executeFile", "objj_method", "objj_ivar",
    "class_addMethods", "class_addIvars", "class_addProtocol", "sel_getUid",
)

CAPPUCCINO = _group("self", "_cmd")

ENVIRONMENTS: dict[str, dict[str, PredefinedGlobal]] = {
    "ecma": {**ECMA_IDENTIFIERS, **NEW_ECMA_IDENTIFIERS},
    "browser": BROWSER,
    "devel": DEVEL,
    "nonstandard": NONSTANDARD,
    "node": NODE,
    "objj": {**OBJJ_RUNTIME, **CAPPUCCINO},
}

DEFAULT_ENVIRONMENTS = ("ecma", "browser", "devel", "nonstandard", "node", "objj")


def build_predefined_globals(environments: tuple[str, ...] = DEFAULT_ENVIRONMENTS) -> dict[str, PredefinedGlobal]:
    table: dict[str, PredefinedGlobal] = {}
    for environment in environments:
        group = ENVIRONMENTS.get(environment)
        if group is None:
            raise ValueError(f"Unknown globals environment '{environment}'")
        table.update(group)
    return table
