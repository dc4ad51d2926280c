# run.py
import os
from dotenv import load_dotenv

basedir = os.path.abspath(os.path.dirname(__file__))
load_dotenv(dotenv_path=os.path.join(basedir, '.env'))

from pawhaven import create_app
from pawhaven.realtime import socketio

app = create_app()

if __name__ == '__main__':
    host = os.getenv('FLASK_RUN_HOST', '127.0.0.1')
    port = int(os.getenv('FLASK_RUN_PORT', 4000))
    debug = app.config.get('DEBUG', False)
    # HTTP and the Socket.IO gateway share one server
    socketio.run(app, host=host, port=port, debug=debug, allow_unsafe_werkzeug=True)
