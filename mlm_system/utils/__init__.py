# mlm_system/utils/__init__.py
