"""Mobile auto-detailing marketplace API"""
