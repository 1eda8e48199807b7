"""Template stub constants

Type codes used in the structured form, and the static lookup tables that
drive element building and markup serialization. Everything here is built
once at import time and never mutated.

Usage:
    from stubhtml.constants import VOID_ELEMENTS, StubType
"""

import enum


class StubType(enum.IntEnum):
    TEXT = 1
    INTERPOLATOR = 2
    TRIPLE = 3
    SECTION = 4
    INVERTED = 5
    CLOSING = 6
    ELEMENT = 7
    PARTIAL = 8
    COMMENT = 9
    DELIMCHANGE = 10
    MUSTACHE = 11
    TAG = 12
    COMPONENT = 15


# Tags starting with this prefix are custom components, e.g. <rv-widget>
COMPONENT_PREFIX = "rv-"

PRESERVE_WHITESPACE_ELEMENTS = frozenset({"pre"})

# Content of these elements is one raw text run
RAWTEXT_ELEMENTS = frozenset({"script", "style"})

VOID_ELEMENTS = frozenset(
    {
        "area",
        "base",
        "br",
        "col",
        "command",
        "doctype",
        "embed",
        "hr",
        "img",
        "input",
        "keygen",
        "link",
        "meta",
        "param",
        "source",
        "track",
        "wbr",
    }
)

# Elements that may be frozen into literal markup. Anything else (SVG and
# other foreign content) must go through the structured form.
STRINGIFIABLE_ELEMENTS = frozenset(
    """
    a abbr acronym address applet area b base basefont bdo big blockquote body
    br button caption center cite code col colgroup dd del dfn dir div dl dt em
    fieldset font form frame frameset h1 h2 h3 h4 h5 h6 head hr html i iframe
    img input ins isindex kbd label legend li link map menu meta noframes
    noscript object ol p param pre q s samp script select small span strike
    strong style sub sup textarea title tt u ul var article aside audio bdi
    canvas command data datagrid datalist details embed eventsource figcaption
    figure footer header hgroup keygen mark meter nav output progress ruby rp
    rt section source summary time track video wbr
    """.split()
)

# Attribute names that make an element unstringifiable
UNSTRINGIFIABLE_ATTRIBUTES = frozenset({"id", "intro", "outro"})

# Opening one of the listed tags implicitly closes the keyed element
AUTO_CLOSING_TAGS = {
    "li": frozenset({"li"}),
    "dt": frozenset({"dt", "dd"}),
    "dd": frozenset({"dt", "dd"}),
    "p": frozenset(
        {
            "address",
            "article",
            "aside",
            "blockquote",
            "dir",
            "div",
            "dl",
            "fieldset",
            "footer",
            "form",
            "h1",
            "h2",
            "h3",
            "h4",
            "h5",
            "h6",
            "header",
            "hgroup",
            "hr",
            "menu",
            "nav",
            "ol",
            "p",
            "pre",
            "section",
            "table",
            "ul",
        }
    ),
    "rt": frozenset({"rt", "rp"}),
    "rp": frozenset({"rp", "rt"}),
    "optgroup": frozenset({"optgroup"}),
    "option": frozenset({"option", "optgroup"}),
    "thead": frozenset({"tbody", "tfoot"}),
    "tbody": frozenset({"tbody", "tfoot"}),
    "tr": frozenset({"tr"}),
    "td": frozenset({"td", "th"}),
    "th": frozenset({"td", "th"}),
}

SVG_CASE_SENSITIVE_ELEMENTS = {
    "altglyph": "altGlyph",
    "altglyphdef": "altGlyphDef",
    "altglyphitem": "altGlyphItem",
    "animatecolor": "animateColor",
    "animatemotion": "animateMotion",
    "animatetransform": "animateTransform",
    "clippath": "clipPath",
    "feblend": "feBlend",
    "fecolormatrix": "feColorMatrix",
    "fecomponenttransfer": "feComponentTransfer",
    "fecomposite": "feComposite",
    "feconvolvematrix": "feConvolveMatrix",
    "fediffuselighting": "feDiffuseLighting",
    "fedisplacementmap": "feDisplacementMap",
    "fedistantlight": "feDistantLight",
    "feflood": "feFlood",
    "fefunca": "feFuncA",
    "fefuncb": "feFuncB",
    "fefuncg": "feFuncG",
    "fefuncr": "feFuncR",
    "fegaussianblur": "feGaussianBlur",
    "feimage": "feImage",
    "femerge": "feMerge",
    "femergenode": "feMergeNode",
    "femorphology": "feMorphology",
    "feoffset": "feOffset",
    "fepointlight": "fePointLight",
    "fespecularlighting": "feSpecularLighting",
    "fespotlight": "feSpotLight",
    "fetile": "feTile",
    "feturbulence": "feTurbulence",
    "foreignobject": "foreignObject",
    "glyphref": "glyphRef",
    "lineargradient": "linearGradient",
    "radialgradient": "radialGradient",
    "textpath": "textPath",
    "vkern": "vkern",
}

# SVG attributes that should have their case preserved
SVG_CASE_SENSITIVE_ATTRIBUTES = {
    "attributename": "attributeName",
    "attributetype": "attributeType",
    "basefrequency": "baseFrequency",
    "baseprofile": "baseProfile",
    "calcmode": "calcMode",
    "clippathunits": "clipPathUnits",
    "contentscripttype": "contentScriptType",
    "contentstyletype": "contentStyleType",
    "diffuseconstant": "diffuseConstant",
    "edgemode": "edgeMode",
    "externalresourcesrequired": "externalResourcesRequired",
    "filterres": "filterRes",
    "filterunits": "filterUnits",
    "glyphref": "glyphRef",
    "gradienttransform": "gradientTransform",
    "gradientunits": "gradientUnits",
    "kernelmatrix": "kernelMatrix",
    "kernelunitlength": "kernelUnitLength",
    "keypoints": "keyPoints",
    "keysplines": "keySplines",
    "keytimes": "keyTimes",
    "lengthadjust": "lengthAdjust",
    "limitingconeangle": "limitingConeAngle",
    "markerheight": "markerHeight",
    "markerunits": "markerUnits",
    "markerwidth": "markerWidth",
    "maskcontentunits": "maskContentUnits",
    "maskunits": "maskUnits",
    "numoctaves": "numOctaves",
    "pathlength": "pathLength",
    "patterncontentunits": "patternContentUnits",
    "patterntransform": "patternTransform",
    "patternunits": "patternUnits",
    "pointsatx": "pointsAtX",
    "pointsaty": "pointsAtY",
    "pointsatz": "pointsAtZ",
    "preservealpha": "preserveAlpha",
    "preserveaspectratio": "preserveAspectRatio",
    "primitiveunits": "primitiveUnits",
    "refx": "refX",
    "refy": "refY",
    "repeatcount": "repeatCount",
    "repeatdur": "repeatDur",
    "requiredextensions": "requiredExtensions",
    "requiredfeatures": "requiredFeatures",
    "specularconstant": "specularConstant",
    "specularexponent": "specularExponent",
    "spreadmethod": "spreadMethod",
    "startoffset": "startOffset",
    "stddeviation": "stdDeviation",
    "stitchtiles": "stitchTiles",
    "surfacescale": "surfaceScale",
    "systemlanguage": "systemLanguage",
    "tablevalues": "tableValues",
    "targetx": "targetX",
    "targety": "targetY",
    "textlength": "textLength",
    "viewbox": "viewBox",
    "viewtarget": "viewTarget",
    "xchannelselector": "xChannelSelector",
    "ychannelselector": "yChannelSelector",
    "zoomandpan": "zoomAndPan",
}
