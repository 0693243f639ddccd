"""Domain packages - one router/service/repository/schemas set per area"""
