# mlm_system/services/__init__.py
