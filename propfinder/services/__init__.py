"""Services for the Property Finder API"""
