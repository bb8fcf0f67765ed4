# mlm_system/events/__init__.py
