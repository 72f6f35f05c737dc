from .interface import MysqlInterface

__all__ = ("MysqlInterface",)
