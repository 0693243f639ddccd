"""Waitlist domain - pre-launch signups and referrals"""
