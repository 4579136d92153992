"""Platform abstraction layer."""

from .java import JavaRuntime, find_java, java_executable_name

__all__ = [
    "JavaRuntime",
    "find_java",
    "java_executable_name",
]
