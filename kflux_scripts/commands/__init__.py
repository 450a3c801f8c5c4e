"""Interactive generator commands, one per resource kind"""
