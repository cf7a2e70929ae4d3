"""qpm - 依赖解析与本地制品缓存"""

__version__ = "0.1.0"
