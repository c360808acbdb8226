"""Round engine: geometry, scoring, countdown and the round state machine.

The geometry, scoring, timer and controller modules know nothing about HTTP
or Socket.IO. Only ``scheduler`` (background tasks) and ``sessions`` (the
room relay) use the shared ``socketio`` instance; routes and socket handlers
reach the engine through ``sessions``.
"""
