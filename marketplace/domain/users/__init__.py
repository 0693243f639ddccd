"""User domain - authentication and profiles"""
