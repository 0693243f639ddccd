"""Standalone routers for upstream proxies"""
