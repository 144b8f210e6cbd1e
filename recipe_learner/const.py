"""Constants for the Recipe Learner engine."""

# Configuration keys
CONF_DATABASE_PATH = "database_path"
CONF_CONFIDENCE_THRESHOLD = "confidence_threshold"
CONF_FORCE_AUTONOMOUS = "force_autonomous"
CONF_API_KEY = "api_key"
CONF_MODEL = "model"
CONF_LEARN_MIN_CONFIDENCE = "learn_min_confidence"
CONF_FALLBACK_CONFIDENCE = "fallback_confidence"

# Environment variables
ENV_DATABASE_PATH = "RECIPE_LEARNER_DB"
ENV_FORCE_AUTONOMOUS = "RECIPE_LEARNER_FORCE_AUTONOMOUS"
ENV_API_KEY = "LANGEXTRACT_API_KEY"

# Default values
DEFAULT_DATABASE_PATH = "data/training.db"
DEFAULT_MODEL = "gemini-2.5-flash-lite"
DEFAULT_CONFIDENCE_THRESHOLD = 60
DEFAULT_LEARN_MIN_CONFIDENCE = 70
DEFAULT_FALLBACK_CONFIDENCE = 95
DEFAULT_SERVINGS = 4
DEFAULT_UNIT = "piece"

# Available models
AVAILABLE_MODELS = [
    "gemini-2.5-flash-lite",
    "gemini-2.5-flash",
    "gemini-2.5-pro",
    "gpt-4o-mini",
    "gpt-4o",
]

# Document structure
NOT_FOUND = -1
TITLE_SCAN_LINES = 5
TITLE_MIN_LENGTH = 5
HEADER_MAX_LENGTH = 50
HEADER_MIN_LENGTH = 3
INGREDIENT_SECTION_LOOKAHEAD = 20
POSITIONAL_SECTION_WIDTH = 15
METADATA_SCAN_LINES = 15
DEFAULT_INGREDIENT_POSITION = 0.2
DEFAULT_STEP_POSITION = 0.5

# Ingredient lines
INGREDIENT_MAX_LINE_LENGTH = 80
INGREDIENT_MIN_NAME_LENGTH = 2

# Steps
STEP_MIN_LENGTH = 30
STEP_MIN_LINE_LENGTH = 15
UNLABELED_STEP_MIN_LENGTH = 40
MIN_INSTRUCTION_LENGTH = 5

# Learning
LEARN_TOP_KEYWORDS = 10
LEARN_TOP_UNITS = 20
LEARN_INGREDIENT_SAMPLES = 5
LEARN_STEP_SAMPLES = 3
LEARN_STEP_PREFIX_LENGTH = 30
LEARN_STEP_MATCH_LENGTH = 20
LEARN_LINE_MAX_LENGTH = 100
PATTERN_SET_VERSION = "3.0"
PATTERN_TYPE = "intelligent_patterns"

# Learning phases (total examples)
PHASE_HYBRID_AT = 500
PHASE_AUTONOMOUS_AT = 1500

# Autonomy readiness milestones
MILESTONE_BASIC = 500
MILESTONE_GOOD = 1500
MILESTONE_EXCELLENT = 3000

# Section keyword vocabularies (German + English)
INGREDIENT_KEYWORDS = [
    "zutaten",
    "ingredients",
    "brauchst",
    "benötigt",
    "du brauchst",
    "das brauchst",
    "das brauchts",
]

STEP_KEYWORDS = [
    "zubereitung",
    "anleitung",
    "schritte",
    "so geht",
    "preparation",
    "instructions",
    "directions",
    "method",
    "und so",
    "so wird",
]

# Informal step headings only used when locating the step section
INFORMAL_STEP_KEYWORDS = [
    "gemacht",
    "wirds",
    "gelingt",
    "so gehts",
    "how to make",
]

# Known units, mass/volume/count plus informal cooking units
UNITS = [
    "g", "gr", "kg", "mg",
    "ml", "cl", "dl", "l", "liter",
    "tl", "el", "teelöffel", "esslöffel",
    "prise", "prisen", "msp", "messerspitze",
    "stück", "stücke", "stk",
    "scheibe", "scheiben",
    "zehe", "zehen",
    "bund", "zweig", "zweige",
    "dose", "dosen",
    "packung", "packungen", "päckchen", "pck",
    "becher", "glas", "tasse", "tassen", "handvoll",
    "cup", "cups", "tbsp", "tsp", "tablespoon", "tablespoons",
    "teaspoon", "teaspoons", "oz", "lb", "lbs",
    "pinch", "clove", "cloves", "can", "cans",
    "slice", "slices", "piece", "pieces",
]

COOKING_VERBS = [
    # German
    "verrühren", "mischen", "vermischen", "kochen", "braten", "anbraten",
    "schneiden", "hacken", "würzen", "hinzugeben", "geben", "rühren",
    "unterrühren", "erhitzen", "backen", "dünsten", "garen", "ziehen",
    "lassen", "servieren", "garnieren", "abschmecken", "schmoren",
    "köcheln", "ruhen",
    # English
    "mix", "cook", "fry", "cut", "chop", "season", "add", "stir", "heat",
    "bake", "sear", "braise", "simmer", "rest", "serve", "garnish",
    "adjust seasoning",
]

# Words that must not be taken as an ingredient name
NAME_STOPWORDS = [
    "min", "min.", "minute", "minuten", "minutes",
    "std", "std.", "stunde", "stunden", "hour", "hours",
    "sek", "sekunden", "seconds",
    "kcal", "kalorien", "calories", "kj",
    "grad", "degrees",
    "portion", "portionen", "person", "personen",
    "servings", "serves",
]

APPROXIMATION_MARKERS = ["ca.", "ca", "circa", "etwa", "approx.", "approx", "about", "~"]

# Sources
LEARNABLE_SOURCE_PREFIX = "ai-"

# Similar example lookup
SIMILAR_MIN_CONFIDENCE = 80
SIMILARITY_KEYWORDS = [
    "zutaten",
    "ingredients",
    "brauchst",
    "zubereitung",
    "anleitung",
    "schritte",
    "personen",
    "portionen",
    "minuten",
]
