"""
Service accounts - Upload on behalf of a domain user
"""
import asyncio
from driveupload import DriveClient, ServiceAccountAuth


async def main():
    auth = ServiceAccountAuth.from_file("service-account.json", subject="me@example.com")

    async with DriveClient(auth=auth) as drive:
        result = await drive.upload("movie.mov", mime_type="video/quicktime")
        print(f"Uploaded: {result.file_id}")

        # Look up what Drive stored
        info = await drive.get_final(result.file_id)
        print(f"Remote: {info.size} bytes, {info.md5}, {info.mime_type}")


if __name__ == "__main__":
    asyncio.run(main())
