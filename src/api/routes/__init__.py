"""
API Routes package
"""
from . import files, groups

__all__ = ['files', 'groups']
