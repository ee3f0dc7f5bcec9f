"""eventpace 命令行脚本"""
