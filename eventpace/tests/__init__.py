"""
eventpace 测试

运行方式:
    pytest eventpace/tests/ -v --tb=short
"""
