# mlm_system/config/__init__.py
