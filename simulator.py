"""Interactive CLI simulator — test the OTP flow without the front-end."""

import asyncio

import httpx
import uvicorn

from innerlight.config import settings
from innerlight.services.client_api import OTPClient

GREEN = "\033[92m"
RED = "\033[91m"
YELLOW = "\033[93m"
CYAN = "\033[96m"
DIM = "\033[2m"
BOLD = "\033[1m"
RESET = "\033[0m"


async def main() -> None:
    print(f"\n{BOLD}{'=' * 52}")
    print(f"  🔐  InnerLight — OTP Simulator")
    print(f"{'=' * 52}{RESET}\n")

    client = OTPClient()

    # ── Start the backend in the background if nothing answers ─
    server = server_task = None
    if not await client.check_health():
        from innerlight.main import app

        # Serve where API_BASE_URL points so the client reaches it
        url = httpx.URL(settings.api_base_url)
        config = uvicorn.Config(
            app, host=url.host, port=url.port or settings.port, log_level="warning"
        )
        server = uvicorn.Server(config)
        server_task = asyncio.create_task(server.serve())
        # Give the server a moment to start
        await asyncio.sleep(0.5)

    print(f"{DIM}Type 'quit' to exit, 'resend' to request a new code{RESET}")
    print(f"{DIM}Without FAST2SMS_API_KEY the code is shown below{RESET}\n")

    phone = input(f"{YELLOW}Enter 10-digit phone number: {RESET}").strip()
    await _send(client, phone)

    while True:
        try:
            otp = input(f"{CYAN}{BOLD}OTP:{RESET} ").strip()
        except (KeyboardInterrupt, EOFError):
            print(f"\n{DIM}Goodbye!{RESET}")
            break

        if not otp:
            continue

        if otp.lower() == "quit":
            print(f"{DIM}Goodbye!{RESET}")
            break

        if otp.lower() == "resend":
            await _send(client, phone)
            continue

        result = await client.verify_otp(phone, otp)
        if result.verified:
            print(f"{GREEN}{BOLD}✔ {result.message}{RESET}\n")
            break
        print(f"{RED}✘ {result.message}{RESET}\n")

    # Shut down the background server
    if server is not None:
        server.should_exit = True
        await server_task


async def _send(client: OTPClient, phone: str) -> None:
    result = await client.send_otp(phone)
    colour = GREEN if result.success else RED
    print(f"{colour}{result.message}{RESET}")
    if result.debug_otp:
        print(f"{DIM}Dev OTP: {result.debug_otp}{RESET}")
    print()


if __name__ == "__main__":
    asyncio.run(main())
