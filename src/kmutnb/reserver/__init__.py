"""Reserver: KMUTNB Software Portal Automation Tool.

This package signs in to the KMUTNB software portal with credentials taken
from the environment and submits one Adobe license reservation using the
authenticated session.
"""
