"""testng-runner: 选择并运行 Java 项目中的 TestNG 测试."""

__version__ = "0.1.0"
