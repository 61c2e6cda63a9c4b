"""Example plugin: answers greetings and tells you what it heard."""

import re

from intentwire.plugin_base import CommandSpec, IntentPlugin, ListenerSpec


class GreeterPlugin(IntentPlugin):
    name = "greeter"
    description = "Say hello back"
    version = "1.0.0"

    def commands(self):
        return [
            CommandSpec(r"(?i)echo\b", self.handle_echo, name="echo"),
        ]

    def listeners(self):
        return [
            ListenerSpec(re.compile(r"(?i)\b(hello|hi|hey)\b"), self.handle_greeting, name="greeting"),
        ]

    def handle_echo(self, route, args):
        route.send(" | ".join(args) if args else "(nothing)")

    def handle_greeting(self, route, message):
        route.send(f"{self.ctx.get_config('greeting', 'Hello')}!")
        return True
