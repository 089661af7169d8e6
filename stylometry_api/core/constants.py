# Reserved author label for documents whose author is withheld
UNKNOWN_AUTHOR = "_Unknown_"

# Attribute names in feature tables
CLASS_ATTRIBUTE = "authorName"
TITLE_ATTRIBUTE = "documentTitle"

# Experiment defaults
DEFAULT_NUM_THREADS = 4
DEFAULT_NUM_FOLDS = 10
CROSS_VALIDATION_SEED = 0

# Feature preparation stages, in execution order
PREPARATION_STAGES = [
    "extract_events",
    "initialize_relevant_events",
    "initialize_attributes",
    "create_training_table",
    "create_test_table",
]

# Event extraction settings accepted by feature drivers
EVENT_ANALYZERS = ["word", "char", "char_wb"]
NORMALIZATIONS = ["frequency", "none"]
DEFAULT_TOKEN_PATTERN = r"(?u)\b\w+\b"
