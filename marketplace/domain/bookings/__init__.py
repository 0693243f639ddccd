"""Booking domain - booking wizard and customer bookings"""
