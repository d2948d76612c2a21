"""
daylog 包入口点 - 支持 `python -m daylog` 调用
"""

from daylog.main import app

if __name__ == "__main__":
    app()
