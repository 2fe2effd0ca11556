"""
Read-only keyword tables shared by the analysis stages.

Everything here is immutable (tuples, frozensets, MappingProxyType) so a single
copy can be read from concurrent requests. Components receive these tables as
constructor arguments and tests pass smaller ones.
"""
from types import MappingProxyType


# -------------------- STOP WORDS --------------------

# Filter used by the structural analyzer's key-term ranking
ANALYSIS_STOPWORDS = frozenset("""
that this with from they have been were will when where what which also such
more most some many much very than then them these those there their would could should
""".split())

STOPWORDS = ANALYSIS_STOPWORDS | frozenset("""
a an the and or but if while with without within into onto from to of in on at by for as that this these those there here
is are was were be been being have has had do does did can could should would may might will shall it its itself himself herself themselves
about above below under over between among per via etc such than then so not no nor also more most less least very much many few each either neither both
other another after before during because since while until about against through throughout every being often usually
""".split())


# -------------------- TOPIC CLASSIFIER --------------------

# topic -> ((keywords, weight), ...); enumeration order breaks ties
DEFAULT_TOPIC_TABLE = MappingProxyType({
    "Calculus": (
        (("calculus", "derivative", "derivatives", "integral", "integrals", "differentiation", "integration"), 3),
        (("limit", "limits", "continuity", "antiderivative"), 1),
    ),
    "Algebra": (
        (("algebra", "polynomial", "polynomials", "quadratic"), 3),
        (("equation", "equations", "variable", "variables", "coefficient", "factor"), 1),
    ),
    "Geometry": (
        (("geometry", "triangle", "triangles", "polygon", "pythagorean"), 3),
        (("circle", "angle", "angles", "radius", "perimeter", "area"), 1),
    ),
    "Statistics": (
        (("statistics", "probability", "variance", "regression", "median"), 3),
        (("data", "mean", "sample", "distribution", "average"), 1),
    ),
    "Trigonometry": (
        (("trigonometry", "sine", "cosine", "tangent"), 3),
        (("radian", "radians", "hypotenuse"), 1),
    ),
    "Biology": (
        (("biology", "photosynthesis", "chlorophyll", "mitochondria", "dna", "organism", "organisms"), 3),
        (("cell", "cells", "gene", "genes", "protein", "enzyme", "species", "evolution", "tissue"), 1),
    ),
    "Chemistry": (
        (("chemistry", "molecule", "molecules", "atom", "atoms", "compound", "covalent", "ionic"), 3),
        (("bond", "bonds", "reaction", "reactions", "element", "electron", "acid", "solution"), 1),
    ),
    "Physics": (
        (("physics", "velocity", "acceleration", "momentum", "newton", "gravity"), 3),
        (("force", "energy", "motion", "mass", "wave", "friction"), 1),
    ),
    "History": (
        (("history", "revolution", "empire", "dynasty", "civilization"), 3),
        (("war", "king", "treaty", "century", "colony", "ancient"), 1),
    ),
    "Literature": (
        (("literature", "novel", "poem", "poetry", "shakespeare", "metaphor"), 3),
        (("author", "character", "narrative", "theme", "stanza"), 1),
    ),
    "Geography": (
        (("geography", "continent", "continents", "latitude", "longitude", "tectonic"), 3),
        (("climate", "river", "mountain", "region", "population"), 1),
    ),
    "Psychology": (
        (("psychology", "cognitive", "conditioning", "subconscious"), 3),
        (("behavior", "behaviour", "mind", "memory", "emotion", "perception"), 1),
    ),
    "Economics": (
        (("economics", "inflation", "supply", "demand", "monetary"), 3),
        (("market", "markets", "price", "prices", "trade", "goods"), 1),
    ),
    "Computer Science": (
        (("algorithm", "algorithms", "programming", "compiler", "database"), 3),
        (("software", "hardware", "function", "variable", "network", "memory"), 1),
    ),
})

DEFAULT_TOPIC = "General Studies"


# -------------------- SUBJECT KEYWORDS --------------------

# Used for fact scoring bonuses and for picking fill-in-the-blank targets
DEFAULT_SUBJECT_KEYWORDS = MappingProxyType({
    "biology": ("cell", "cells", "photosynthesis", "chlorophyll", "mitochondria", "nucleus", "dna",
                "protein", "enzyme", "organism", "evolution", "species", "membrane", "energy"),
    "chemistry": ("atom", "molecule", "electron", "proton", "neutron", "bond", "reaction",
                  "element", "compound", "acid", "base", "catalyst", "solution"),
    "physics": ("force", "energy", "mass", "velocity", "acceleration", "momentum", "gravity",
                "wave", "friction", "newton", "motion", "power"),
    "mathematics": ("equation", "function", "variable", "derivative", "integral", "theorem",
                    "angle", "triangle", "polynomial", "matrix", "probability"),
    "calculus": ("derivative", "integral", "limit", "function", "slope", "rate", "continuity"),
    "algebra": ("equation", "variable", "polynomial", "coefficient", "expression", "factor"),
    "geometry": ("triangle", "circle", "angle", "polygon", "radius", "area", "perimeter"),
    "statistics": ("mean", "median", "variance", "probability", "sample", "distribution"),
    "trigonometry": ("sine", "cosine", "tangent", "angle", "hypotenuse", "radian"),
    "history": ("empire", "revolution", "war", "treaty", "dynasty", "century", "colony", "king"),
    "literature": ("novel", "poem", "character", "theme", "metaphor", "author", "narrative"),
    "geography": ("climate", "continent", "river", "mountain", "latitude", "population"),
    "psychology": ("behavior", "memory", "cognition", "emotion", "perception", "conditioning"),
    "economics": ("market", "supply", "demand", "price", "inflation", "trade", "goods"),
    "computer science": ("algorithm", "function", "variable", "memory", "compiler", "database",
                         "network", "program"),
})


# -------------------- DISTRACTORS --------------------

# Padding statements used when the source text cannot supply enough distinct distractors
DEFAULT_DISTRACTOR_BANK = (
    "It is primarily concerned with peripheral aspects unrelated to the core concept",
    "It describes a general approach focusing on adjacent but distinct principles",
    "It is characterized by features that are context-dependent rather than essential",
    "It is commonly associated with outcomes rather than underlying mechanisms",
    "None of the statements above is supported by the material",
    "It applies only under conditions that the material does not describe",
)
