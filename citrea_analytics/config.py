import os
from dotenv import load_dotenv

# always load from local file
load_dotenv(".env")

# -------- env / config --------
RPC_URL              = os.getenv("CITREA_RPC_URL") or "https://rpc.testnet.citrea.xyz"
CHAIN_ID             = int(os.getenv("CITREA_CHAIN_ID", "5115"))
DEFAULT_CONTRACT     = os.getenv("CONTRACT_ADDRESS") or "0x72B1fC6b54733250F4e18dA4A20Bb2DCbC598556"
DB_PATH              = os.getenv("DATABASE_FILE", "citrea_cache.db")
BATCH_SIZE           = int(os.getenv("BATCH_SIZE", "1000"))
MAX_RETRIES          = int(os.getenv("MAX_RETRIES", "3"))
RETRY_DELAY_S        = int(os.getenv("RETRY_DELAY_MS", "1000")) / 1000.0
CONFIRMS             = int(os.getenv("CONFIRMS", "0"))
ENRICH_CONCURRENCY   = int(os.getenv("ENRICH_CONCURRENCY", "20"))
TOP_K                = int(os.getenv("TOP_K", "10"))
RECENT_SWAPS         = int(os.getenv("RECENT_SWAPS", "100"))
GAS_DECIMALS         = int(os.getenv("GAS_DECIMALS", "18"))
TOKEN_DECIMALS       = int(os.getenv("TOKEN_DECIMALS", "18"))
API_HOST             = os.getenv("API_HOST", "localhost")
API_PORT             = int(os.getenv("API_PORT", "3000"))
MCP_HOST             = os.getenv("MCP_HOST", "0.0.0.0")
MCP_PORT             = int(os.getenv("MCP_PORT", "8000"))
LOG_LEVEL            = os.getenv("LOG_LEVEL", "INFO").upper()

if not RPC_URL.startswith(("http://", "https://")):
    raise SystemExit(f"CITREA_RPC_URL must be an http(s) endpoint, got {RPC_URL!r}")

# meta key holding the last fully scanned block height
CHECKPOINT_KEY = "lastScannedBlock"
