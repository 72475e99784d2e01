from mafia import create_app, socketio

app = create_app()

if __name__ == '__main__':
    # Socket.IO's runner provides the async mode phase timers run under
    socketio.run(app, debug=True)
