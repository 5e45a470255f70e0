"""
Listing Reel - turns listing photos into a short vertical marketing video.
"""
