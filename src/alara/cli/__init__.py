"""
CLI Command Modules
"""
