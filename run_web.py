#!/usr/bin/env python3
"""
Run script for the Ebook Kilat workspace API.
"""
import logging
import os
import sys
from pathlib import Path

# Add the src directory to Python path
project_root = Path(__file__).parent
sys.path.insert(0, str(project_root / "src"))

os.chdir(project_root)

logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")

if __name__ == "__main__":
    from ebook_kilat.web import create_app

    port = int(os.getenv("PORT", "5000"))
    app = create_app()
    print("Starting Ebook Kilat workspace API...")
    print(f"Listening on http://localhost:{port}")
    print("Press Ctrl+C to stop the server.")
    app.run(debug=False, host="0.0.0.0", port=port, use_reloader=False)
