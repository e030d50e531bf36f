"""
Services - review assignment, consensus, applications, accounts.
"""
