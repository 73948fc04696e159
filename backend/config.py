import os

class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    # Seats per match; extra sockets receive 'full'
    MAX_PLAYERS = int(os.environ.get('MAX_PLAYERS', '4'))
    # Double-or-zero overlay timings (milliseconds)
    DOZ_OVERLAY_MS = int(os.environ.get('DOZ_OVERLAY_MS', '2500'))
    DOZ_HEARTBEAT_DELAY_MS = int(os.environ.get('DOZ_HEARTBEAT_DELAY_MS', '350'))
    # Upper clamp for cheated scores
    CHEAT_MAX_VALUE = int(os.environ.get('CHEAT_MAX_VALUE', '999'))
    # Points won (or lost) by a reporter
    REPORT_POINTS = int(os.environ.get('REPORT_POINTS', '5'))
