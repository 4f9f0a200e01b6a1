"""
Engine-wide immutable parameters for prize events.

These values define the public rules of every event.
Changing them changes eligibility and payouts and MUST be publicly announced.
"""

# Prize and vote tokens use 18 decimals (wei-style raw units)
TOKEN_DECIMALS = 18

ONE_TOKEN = 10**TOKEN_DECIMALS

# Upper bound on participants accepted by a single setup call
MAX_PARTICIPANTS_PER_SETUP = 10

# Distribution schedules are whole percentages summing to this
PERCENT_TOTAL = 100

# Vote-token sale (raw payment units per vote weight): 0.01 base token
VOTE_TOKEN = "VOTE"
BASE_TOKEN = "NATIVE"
VOTE_UNIT_PRICE = ONE_TOKEN // 100

# Identity the engine holds escrowed tokens under (32 zero bytes, base58)
DEFAULT_ESCROW_ACCOUNT = "11111111111111111111111111111111"
