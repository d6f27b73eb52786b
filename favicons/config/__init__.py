from favicons.config.loader import FaviconOptions, FileGroup, TaskConfig, get_config

__all__ = ["FaviconOptions", "FileGroup", "TaskConfig", "get_config"]
