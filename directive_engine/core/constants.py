"""Constantes du moteur pour éviter les valeurs magiques dans le code.

Regroupe les seuils heuristiques (poids en tokens, score d'efficacité, scoring des
expériences) et les identifiants fixes de la directive d'urgence.
"""

# Estimation du poids en tokens d'une directive (caractères par token)
CHARS_PER_TOKEN = 3.7

# Score d'efficacité: pénalité au-delà du seuil de poids
TOKEN_WEIGHT_PENALTY_CUTOFF = 1200
EFFICIENCY_SCORE_NOMINAL = 98
EFFICIENCY_SCORE_PENALIZED = 55

# Scoring des expériences A/B
SENTIMENT_WEIGHT = 0.7
TOKEN_COST_WEIGHT = 0.3
TOKENS_PER_COST_UNIT = 1000
SIGNIFICANCE_THRESHOLD = 0.08

# Sharding déterministe: 8 chiffres hexadécimaux = entier non signé 32 bits
PULSE_HEX_DIGITS = 8
PULSE_SPACE = 1 << 32

# Directive d'urgence (Tier 0)
GENESIS_VERSION_TAG = "v0.0.0-genesis"
GENESIS_CONTEXT_NAME = "DIRECTIVE_GENESIS_CORE"
GENESIS_AUTHOR = "SYSTEM_ARCHITECT"
GENESIS_TOKEN_WEIGHT = 25
UNKNOWN_TENANT = "unknown"

# Valeurs par défaut des enregistrements tenant
DEFAULT_DIRECTIVE_VERSION = "v1.0.0-sovereign"
DEFAULT_EXPERIMENTAL_VERSION = "v1.1.0-experimental"
DEFAULT_AUTHOR = "ADMIN_HANDSHAKE"
