"""
LabelDesk Backend: Services Layer
===================================

Service Inventory:
    - LabelStore:   persistence of Label Records (list, lookup, atomic upsert)
    - LabelService: request logic (validation, owner check, error translation)

Both are plain classes constructed by create_app(); routes reach the service
through the get_label_service dependency.
"""
