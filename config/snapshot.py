# config do snapshot da fazenda (fonte somente leitura)
import os
from pathlib import Path

# arquivo json com rações, estoque, atribuições e tanques
FARM_SNAPSHOT_PATH = Path(os.environ.get("AQUAFORECAST_SNAPSHOT", "data/farm_snapshot.json"))
