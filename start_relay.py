"""
Startup script for the Ebook Kilat generation relay
"""
import logging
import os
import sys
from pathlib import Path

# Add the src directory to Python path
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root / "src"))

logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")

from ebook_kilat.web import create_relay_app

if __name__ == "__main__":
    port = int(os.getenv("RELAY_PORT", "3002"))
    app = create_relay_app()
    print("=" * 60)
    print("Ebook Kilat generation relay")
    print("=" * 60)
    print(f"Starting server on http://0.0.0.0:{port}")
    print("   GET  /api/health")
    print("   POST /api/generate-outline")
    print("   POST /api/generate-chapter")
    print("Press Ctrl+C to stop")
    print("=" * 60)
    app.run(host="0.0.0.0", port=port, debug=False)
