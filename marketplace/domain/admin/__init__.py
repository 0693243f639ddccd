"""Admin domain - analytics and provider approval"""
