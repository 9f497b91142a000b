import asyncio
import os

from eth_account import Account

from fileverse_agents import (
    FileverseAgent,
    PinataStorageProvider,
    TacoProvider,
    balance_condition,
    configure_logging,
    initialize_from_env,
)

# Configuration
CHAIN = "sepolia"
NAMESPACE = "my-agent"

# A funded key on the chain above; PINATA_JWT and PINATA_GATEWAY must be set too
account = Account.from_key(os.environ["PRIVATE_KEY"])

storage = PinataStorageProvider(
    pinata_jwt=os.environ["PINATA_JWT"],
    pinata_gateway=os.environ["PINATA_GATEWAY"],
)

# Copy TACO_DOMAIN, TACO_RITUAL_ID, TACO_BACKEND etc. into the config file
initialize_from_env()

# Encrypted files need a TACo backend, e.g. TACO_BACKEND=my_bindings.taco:Backend
access_provider = None
if os.getenv("TACO_BACKEND"):
    access_provider = TacoProvider.from_config(signer=account)


async def public_file_example(agent):
    """Create, read, update and delete a public markdown file."""
    result = await agent.create("# Daily report\n\nAll systems nominal.")
    print(f"Created file {result.file_id} in {result.hash}")

    content = await agent.get_file_content(result.file_id)
    print(f"Content: {content.content!r}")

    updated = await agent.update(result.file_id, "# Daily report\n\nOne warning.")
    print(f"Updated file {updated.file_id} in {updated.hash}")

    deleted = await agent.delete(result.file_id)
    print(f"Deleted file {deleted.file_id} in {deleted.hash}")


async def encrypted_file_example(agent):
    """Create a file only holders of at least 0.01 ETH can read."""
    condition = balance_condition(10**16)
    result = await agent.create("Holders-only notes", {"access_condition": condition})
    print(f"Created encrypted file {result.file_id}")

    # The condition context is derived from the ciphertext and the signer
    content = await agent.get_file_content(result.file_id)
    print(f"Decrypted: {content.decrypted}, content: {content.content!r}")


async def main():
    configure_logging("INFO")

    async with FileverseAgent(CHAIN, account, storage, access_provider=access_provider) as agent:
        portal_address = await agent.setup_storage(NAMESPACE)
        print(f"Portal: {portal_address}")

        await public_file_example(agent)
        if access_provider is not None:
            await encrypted_file_example(agent)


if __name__ == "__main__":
    asyncio.run(main())
