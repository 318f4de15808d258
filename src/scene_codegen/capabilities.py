"""Names a generated component may reference without defining them.

The rendering host injects these into the component's scope; anything
else a component calls has to be declared locally.
"""
from __future__ import annotations

ENTRY_SYMBOL = "GeneratedComponent"

# Destructured fields of the entry symbol's single parameter.
ENTRY_PARAMS = ("content", "theme")

REACT_NAMES = frozenset({
    "React", "useState", "useEffect", "useRef", "useMemo", "useCallback",
    "useContext", "createContext", "useReducer", "useLayoutEffect",
    "forwardRef", "memo", "Children", "cloneElement", "isValidElement",
    "h", "Fragment",
})

RENDERER_NAMES = frozenset({
    "useCurrentFrame", "useVideoConfig", "interpolate", "spring",
    "Easing", "AbsoluteFill", "Sequence", "Img", "staticFile",
    "OffthreadVideo", "Audio", "Video", "continueRender", "delayRender",
    "useNoise2D", "useNoise3D",
    "TransitionSeries", "linearTiming", "springTiming", "fade", "slide", "wipe",
})

ANIMATION_HELPERS = frozenset({
    "fadeInBlur", "fadeInUp", "scaleIn",
    "slideFromLeft", "slideFromRight",
    "glowPulse", "revealLine", "animatedNumber",
    "typewriterReveal", "counterSpinUp", "horizontalWipe",
    "parallaxLayer", "fadeOutDown",
    "staggerEntrance", "floatY", "breathe",
})

STYLE_HELPERS = frozenset({
    "meshGradientStyle", "animatedMeshBg", "gridPatternStyle",
    "noiseOverlayStyle", "glowOrbStyle", "scanLineStyle", "glowBorderStyle",
    "glassSurface", "glassCard", "depthShadow", "gradientText",
    "accentColor", "shimmerStyle", "isThemeDark", "mergeThemeWithOverrides",
})

TYPOGRAPHY_HELPERS = frozenset({
    "getTypography", "spacing", "typography", "typo", "easings",
    "themedHeadlineStyle", "themedButtonStyle",
})

SANDBOX_NAMES = (
    REACT_NAMES
    | RENDERER_NAMES
    | ANIMATION_HELPERS
    | STYLE_HELPERS
    | TYPOGRAPHY_HELPERS
    | frozenset({"MockupPlaceholder"})
)

JS_KEYWORDS = frozenset({
    "if", "else", "return", "const", "let", "var", "function", "for",
    "while", "switch", "case", "break", "continue", "new", "typeof",
    "instanceof", "void", "delete", "throw", "try", "catch", "finally",
    "do", "in", "of", "class", "extends", "super", "this", "import",
    "export", "default", "from", "as", "async", "await", "yield",
    "static", "get", "set", "with", "debugger", "true", "false",
    "null", "undefined", "NaN", "Infinity",
})

JS_BUILTINS = frozenset({
    "console", "Math", "Object", "Array", "String", "Number", "Boolean",
    "Date", "JSON", "Map", "Set", "WeakMap", "WeakSet", "Promise",
    "Error", "TypeError", "ReferenceError", "SyntaxError", "RangeError",
    "parseInt", "parseFloat", "isNaN", "isFinite", "RegExp", "Symbol",
    "encodeURIComponent", "decodeURIComponent", "encodeURI", "decodeURI",
    "setTimeout", "clearTimeout", "setInterval", "clearInterval",
    "window", "document", "Proxy", "Reflect",
})

# Names always in scope inside the entry symbol.
IMPLICIT_NAMES = frozenset({ENTRY_SYMBOL, *ENTRY_PARAMS, "frame"})

# Helpers that return a plain CSS string; spreading one into a style object is a bug.
STRING_RETURNING_HELPERS: dict[str, str] = {
    "depthShadow": "boxShadow",
}

# Helpers that return a single aggregate object; destructuring a same-named field out of it is a bug.
AGGREGATE_RETURNING_HELPERS: dict[str, tuple[str, ...]] = {
    "getTypography": ("typo", "typography"),
}


def is_allowed(name: str) -> bool:
    """True if ``name`` is provided by the host or the language itself."""
    return (
        name in SANDBOX_NAMES
        or name in JS_KEYWORDS
        or name in JS_BUILTINS
        or name in IMPLICIT_NAMES
    )
