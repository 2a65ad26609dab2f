"""
Resumable sessions - Create a session URL now, upload into it later
"""
import asyncio
import os
from driveupload import DriveClient, ExponentialBackoffStrategy, DriveUploadError


async def main():
    async with DriveClient(token=os.environ["DRIVEUPLOAD_TOKEN"]) as drive:
        size = os.path.getsize("backup.tar")
        url = await drive.get_upload_url("backup.tar", size)
        print(f"Session: {url}")

        # Upload into the session, retrying failed continuation probes
        try:
            result = await drive.upload(
                "backup.tar",
                upload_url=url,
                probe_retry=ExponentialBackoffStrategy(drive.config.retry),
            )
            print(f"Uploaded: {result.file_id}")
        except DriveUploadError as e:
            # Transfer may have completed even if verification failed
            print(f"Failed: {e} (file id: {e.file_id})")


if __name__ == "__main__":
    asyncio.run(main())
