"""
CrimeStat — FastAPI + folium + altair
Modular entry point. All logic is split across:
  config.py, models.py, errors.py, geometry.py, drawing.py, query.py,
  data_fetchers.py, fetch_controller.py, presentation.py, statistics.py,
  views.py, pages.py, cache.py, routes.py
"""

import logging

logging.basicConfig(level=logging.INFO)

from crimestat.routes import app  # noqa: F401,E402


def run():
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)


if __name__ == "__main__":
    run()
