"""
Journal Viewer - Browse and search systemd journal entries
"""
