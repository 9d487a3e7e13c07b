"""Development server for the education portal API"""
import logging
import os
import sys

from app import create_app

app = create_app()

logging.basicConfig(
    level=str(app.config.get('LOG_LEVEL', 'INFO')).upper(),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

if __name__ == '__main__':
    # argv wins over PORT so `python run.py 8080` keeps working
    port = int(sys.argv[1]) if len(sys.argv) > 1 else int(os.environ.get('PORT', 5000))
    debug = os.environ.get('FLASK_DEBUG', '0') == '1'

    logging.getLogger(__name__).info(f"Serving portal API on port {port} (debug={debug})")
    app.run(debug=debug, host=os.environ.get('HOST', '0.0.0.0'), port=port, use_reloader=debug)
