"""External service gateways - identity, payments, maps"""
