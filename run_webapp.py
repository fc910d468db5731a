#!/usr/bin/env python3
"""
Simple script to run the Flask webapp
"""

from velociview import config
from velociview.app import app

if __name__ == '__main__':
    app.run(debug=config.FLASK_DEBUG, host='0.0.0.0', port=config.PORT)
