"""
Web tier for Help Me Budget.

FastAPI page loaders, form actions and JSON passthrough routes that forward
to the budgeting backend API and to Supabase Auth.
"""
