"""
HTTP transport for Airtable webhooks.
"""
