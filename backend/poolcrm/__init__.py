"""
Multi-tenant CRM backend for pool construction companies.
"""
