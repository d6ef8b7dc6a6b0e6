"""Launch file for the ros2tui terminal tool."""

from launch import LaunchDescription
from launch.actions import DeclareLaunchArgument
from launch.substitutions import LaunchConfiguration
from launch_ros.actions import Node


def generate_launch_description():
    """Start ros2tui with a selectable configuration."""
    config = LaunchConfiguration("config")
    return LaunchDescription(
        [
            DeclareLaunchArgument(
                "config",
                default_value="default",
                description="Name of config/<name>.yaml or a path to a config file",
            ),
            Node(
                package="ros2tui",
                executable="ros2tui",
                name="ros2tui",
                arguments=["--config", config],
                output="screen",
                emulate_tty=True,
            ),
        ]
    )
