"""
LabelDesk Backend: API Routes Package
=======================================

Route Inventory:
    - labels.py:  GET  /api/labels    (every Label Record)
                  POST /api/labels    (create or update one image's label)
    - health.py:  GET  /health        (database connectivity probe)

Routes stay thin: they pull the LabelService off app.state through a
dependency, call it, and shape the response. Errors are raised as
LabelDeskError subclasses and turned into responses by the handlers
registered in main.py.
"""
